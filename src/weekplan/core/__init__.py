"""
Planner core.

Components:
- dates.py: week start, canonical date keys, day-of-week tags
- stats.py: pure completion statistics over daily entries
- schedule.py: WeekSchedule editing (toggle, find-or-create, upsert)
- service.py: PlannerService, the task/entry lifecycle manager
- models.py / ports.py / errors.py: data structures, collaborator Protocols, exceptions
"""
