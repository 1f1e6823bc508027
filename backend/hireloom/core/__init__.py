"""Configuration, errors, LLM access and the exam runner."""
