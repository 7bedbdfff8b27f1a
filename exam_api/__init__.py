"""Storage boundary for mock exam attempts, answers and grading."""
