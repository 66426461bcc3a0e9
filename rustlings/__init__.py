"""Small Rust exercises with a command line to verify, run, watch and grade them."""

__version__ = "5.5.1"