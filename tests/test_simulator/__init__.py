"""
Simulator Tests

Request model and wire codec, transport, fault injection, doors,
the elevator state machine and the floor/elevator-side subsystems.
"""
