"""Request surface for the Huddle server."""
