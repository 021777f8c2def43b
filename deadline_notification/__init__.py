"""Deadline reminder service (stream reconciler + scheduled dispatcher).

Task table changes arrive from DynamoDB Streams and are reconciled into one
EventBridge Scheduler schedule per task. When a schedule fires, the dispatcher
re-reads the task, resolves the assignee's contact address in Cognito and
publishes a reminder through SNS.
"""

__version__ = "0.1.0"
