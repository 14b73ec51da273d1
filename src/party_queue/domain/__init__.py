"""
Domain Layer

Pure business logic with no infrastructure dependencies.

Bounded contexts:
- queue/: shared playback queue, history, now playing, moderation settings
- playlists/: user-owned ordered track lists
- users/: identities and roles supplied by the login provider
- shared/: exceptions, messages, types and the event bus
"""
