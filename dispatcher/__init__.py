"""Monitoring Dispatcher + Cron Trigger"""
from dispatcher.main import MonitoringDispatcher
from dispatcher.model.dispatcher import CronConfig, DispatcherConfig, MonitoringSchedule

__all__ = ["MonitoringDispatcher", "CronConfig", "DispatcherConfig", "MonitoringSchedule"]
