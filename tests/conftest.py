import matplotlib

# Headless backend so plotting tests can save figures without a display
matplotlib.use("Agg")
