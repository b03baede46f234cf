"""Business logic for pull-request chores and ports."""
