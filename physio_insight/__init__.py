"""PhysioInsight: patient feedback collection and AI-assisted analysis."""
