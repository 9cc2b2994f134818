"""Practice table: a remote player against house bots over WebSockets."""
