"""Asynchronous task execution and tracking.

A slow business operation is admitted as a task row (committed in its own
short transaction), executed on the database-bound worker pool under a fresh
session, and observed by clients through polling. Nothing here retries,
cancels or heartbeats: a worker that dies mid-execution leaves its task
IN_PROGRESS, and the daily sweep only reclaims COMPLETED and FAILED rows.
"""
