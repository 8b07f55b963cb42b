"""FitCircle relationship & visibility backend."""
