"""
Tekton Watch - follow a triggered Tekton PipelineRun from a CI job.

This package provides:
- Discovery of the Tekton API endpoint that hosts a run
- Live tailing of every step container's logs
- Relaying of the first failing step's exit code as the process status
"""

__version__ = "0.3.0"
