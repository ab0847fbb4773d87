"""Daily macro goals and progress."""
