"""Constants used throughout the IK solvers."""

import math

# Numerical tolerances
EPSILON_FLOAT32 = 1e-5
EPSILON_FLOAT64 = 1e-10

# Default solver budgets
DEFAULT_MAX_ERROR = 0.01
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_TIMES_PER_FRAME = 5.0
DEFAULT_MAX_ORIENTATION_ERROR = math.radians(5)

# Jacobian builder
AXIS_DEGENERACY_THRESHOLD = 1e-2

# Linear system strategies
PSEUDO_INVERSE_MAX_STEP = math.radians(10)
SDLS_RANK_THRESHOLD = 1e-6
SDLS_MAX_CHANGE = math.radians(45)
TRANSPOSE_DEGENERACY_THRESHOLD = 1e-3
TRANSPOSE_MAX_STEP = math.radians(45)

# TRIK
TRIK_WEIGHT_RATIO = 3.0
TRIK_GAMMA = 0.5
TRIK_MAX_TWIST = math.radians(15)
TRIK_MIN_TWIST = math.radians(5)
TRIK_ALIGNMENT_CLAMP = math.radians(20)
TRIK_WEIGHT_BASE = 1.5

# BioIK
BIOIK_POPULATION_SIZE = 12
BIOIK_ELITISM_SIZE = 4
BIOIK_CROSS_PROBABILITY = 1.0
BIOIK_INITIAL_SPREAD = math.radians(60)
BIOIK_WIPE_INTERVAL = 5
BIOIK_POSE_WEIGHT = 0.5

