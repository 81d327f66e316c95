"""
Reminder subsystem.

- reminder.py: ReminderNotifier (Notifier port) and the asyncio daily reminder loop
"""
