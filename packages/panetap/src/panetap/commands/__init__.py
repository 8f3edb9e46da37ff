"""Action implementations - each module registers one command on ``app``."""
