"""
This package contains the transcoding pipeline of the Batch Transcoder.

The pipeline is a small state machine that drives the services: it samples,
asks for approval, loops over profiles on rejection, and finally commits to a
full encode of the tree followed by the comparison report.
"""
