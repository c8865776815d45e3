"""Astana Hub tech-task watcher.

Crawls the tech-task listing, keeps the tasks whose deadline has not passed,
and posts every task not delivered before to a Telegram channel.
"""

__version__ = "0.1.0"
