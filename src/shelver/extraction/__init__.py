# ABOUTME: Boundary to the language-model and transcription collaborators.
# ABOUTME: Turns text, audio, or shelf photos into validated (title, author) lists.
