"""
Course recommendation engine.

Responsibilities:
- Resolve a learner's interests and enrollment history.
- Build the pool of published courses the learner has not taken.
- Score each candidate on interest, category affinity, rating and popularity.
- Rank candidates and return the top N.
"""
