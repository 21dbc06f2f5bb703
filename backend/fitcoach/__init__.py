"""FitCoach backend: plan generation, parsing and scheduled report delivery."""
