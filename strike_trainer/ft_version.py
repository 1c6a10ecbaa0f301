"""Single version source for Strike Trainer."""

VERSION = "1.0.0"
