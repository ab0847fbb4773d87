"""AI meal plans: prompt, generation, tolerant decoding and storage."""
