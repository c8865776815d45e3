"""Scheduler module for the periodic tech-task check.

Schedule overview:
  - every SCHEDULE_INTERVAL_MINUTES (default 30) - crawl, filter, post new tasks
"""
