"""Static exercise catalog grouped by muscle group."""
