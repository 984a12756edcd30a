"""Infrastructure helpers: clock, configuration manager, storage backends."""
