"""
This package contains the services of the Batch Transcoder: file discovery,
metadata probing, sample windows, encoder invocation, preset loading,
source/target reconciliation and the file-based logs.
"""
