"""
Ingestion: turning stored cases into vectors in the index.

Cases are decoded and stripped of markup, split into sentence-aligned
chunks under the embedding model's token limit, embedded, and upserted
with a resumable checkpoint.
"""
