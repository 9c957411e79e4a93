"""Send Graphite metrics, flushing whenever roughly 1 KB has accumulated."""

import sumo_logger

with sumo_logger.create_logger(
    endpoint="https://collectors.sumologic.com/receiver/v1/http/YOUR_TOKEN",
    graphite=True,
    batch_size=1024,
) as metrics:
    for i in range(100):
        metrics.log({"path": "app.requests.latency_ms", "value": 10 + i % 7})
