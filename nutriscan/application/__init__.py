"""Application services coordinating domain and ports."""
