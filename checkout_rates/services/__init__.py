# Services layer for quoting logic
