from dispatcher.model.dispatcher import CronConfig, DispatcherConfig, MonitoringSchedule

__all__ = ["CronConfig", "DispatcherConfig", "MonitoringSchedule"]
