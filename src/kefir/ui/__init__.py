"""Terminal presentation: styling, rendering and raw terminal I/O."""
