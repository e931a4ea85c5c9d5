"""
Screenshot pipeline.

Each discovered file runs matcher -> classifier -> relocator inside a
single-concurrency work queue.
"""

__all__ = ["matcher", "classifier", "relocator", "work_queue"]
