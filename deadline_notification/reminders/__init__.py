"""Reminder reconciliation and dispatch.

The reconciler keeps one EventBridge schedule per task in line with the task
table's change stream; the dispatcher runs when a schedule fires and sends the
reminder to the task's assignee.
"""
