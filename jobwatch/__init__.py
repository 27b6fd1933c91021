"""
Jobwatch - launch and supervise external jobs.

Runs a fixed executable with per-job arguments, retries failed runs, keeps
an in-memory job history and reports which job shapes tend to fail.
"""

__version__ = "0.1.0"
