"""
Utilities Package for the Batch Transcoder.

Helpers that are not specific to one stage of the workflow.

Modules:
    - format_utils.py: Human-readable bit rates, sizes, percentages and durations.
    - process_utils.py: A logged, argument-vector wrapper around `subprocess.run`.
    - tool_verifier.py: Startup check that the encoder and probe can be executed.
    - shutdown_manager.py: Graceful Ctrl+C handling between encoder invocations.
"""
