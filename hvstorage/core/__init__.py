"""Core report components: guard, sink, collector, workflow."""
