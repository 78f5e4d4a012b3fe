"""Pure transform stages plus the stream prober and orchestration loop."""
