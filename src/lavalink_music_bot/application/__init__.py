"""
Application Layer

Contains use cases, command/query handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: write operations (PlayTrackCommand, TransportCommand, CentralRequest, ...)
- queries/: read operations (GetQueueQuery)
- services/: session policy, playback engine adapter, now-playing projection,
  per-guild FIFO and the central channel lifecycle
- interfaces/: port interfaces for the audio node and the display sinks
"""
