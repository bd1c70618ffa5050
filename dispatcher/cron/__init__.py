"""Cron-based Trigger"""
from dispatcher.cron.main import CronEntry, CronTrigger, validate_cron_expression

__all__ = ["CronEntry", "CronTrigger", "validate_cron_expression"]
