"""
This package contains the core domain models of the Batch Transcoder.

The domain layer describes media files and encoding decisions without knowing
how they are obtained: no subprocesses, no filesystem walks, no console.

Modules:
    exceptions.py: The exception hierarchy used by services and the pipeline.
    media.py: `VideoDescriptor`, the normalized summary of one probed file,
              and the helpers that turn raw probe values into typed fields.
    models.py: `EncodeProfile`, `SampleWindow`, `EncodeResult` and
               `ComparisonRecord`.
"""
