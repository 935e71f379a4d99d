# ABOUTME: Matching, queueing, and confirmation services built on the db and metadata layers.
