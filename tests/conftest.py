# transformers exposes `pipeline` lazily; resolve it once up front so that
# unittest.mock.patch("transformers.pipeline") is not overwritten by the
# lazy loader on first access.
try:
    import transformers

    transformers.pipeline
except ImportError:
    pass
