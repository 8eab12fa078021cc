"""Dispatch core.

Forwards inference requests upstream one at a time with:
  - Concurrency Gate (single slot, FIFO)
  - Minimum-interval Rate Limiter (one charge per inbound call)
  - Ordered Endpoint Set with failover on 5xx / transport errors
  - Response Classifier (terminal vs. next-endpoint)
  - Dispatcher orchestrating all of the above
"""
