"""Pure graph routines over component adjacency maps."""
