"""Authentication: users, profiles, password hashing and JWT sessions."""
