"""Section writing: prompts, the continuation loop and text post-processing."""
