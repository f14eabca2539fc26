"""
Data ingestion package for the course recommendation service.

Responsibilities:
- Read a JSON export of the learning platform's users, courses and enrollments.
- Normalize it into the canonical learner, course and enrollment tables.
- Persist the tables as CSV for the recommendation data store.
"""
