"""schemas/: dataclasses for optimizer inputs and outputs."""
