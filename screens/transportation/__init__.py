"""Bus trip log and the transport report."""
