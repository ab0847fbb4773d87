"""Food library, food log, serving sizes and AI-assisted nutrition estimates."""
