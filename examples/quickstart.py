"""sumo_logger Quick Start: ship application logs to a Sumo Logic HTTP source."""

import logging

import sumo_logger

# 1. Create a logger that batches messages and sends every 5 seconds
sumo = sumo_logger.create_logger(
    endpoint="https://collectors.sumologic.com/receiver/v1/http/YOUR_TOKEN",
    interval=5000,
    source_name="my-service",
    source_category="dev/my-service",
    on_error=lambda exc: print(f"send failed: {exc}"),
)

# 2. Log plain strings or structured objects
sumo.log("service started")
sumo.log({"event": "login", "user": "bob"}, url="https://app.example.com/login")

# 3. Or route the stdlib logging module through it
app_log = logging.getLogger("my-service")
app_log.setLevel(logging.INFO)
app_log.addHandler(sumo_logger.SumoHandler(sumo))
app_log.info("handled %d requests", 42)

# 4. Close (flushes remaining messages)
sumo.close()

print("Done! Search for _sourceCategory=dev/my-service in Sumo Logic")
