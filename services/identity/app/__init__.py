"""Hope-AI identity service."""
