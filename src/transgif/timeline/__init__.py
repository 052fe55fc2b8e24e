"""Timeline package: fixed-rate resampling and frame materialization."""
