"""commitsight: contribution statistics and AI feedback from GitHub commit history."""

__version__ = "0.1.0"
