"""tro-spank: Transparent Research Object capture for Slurm jobs.

Hooks a job's SPANK lifecycle, activates XALT execution tracing, and drives the
tro-utils command line tool to build and sign a TRO declaration per job.
"""

__version__ = "0.1.0"
