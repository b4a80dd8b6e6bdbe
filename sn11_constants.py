"""
SN-11 Starship Prototype Configuration Constants

Default physical, episode and reward constants for the SN-11 landing agent.
Every value here seeds a field of agent_config.AgentConfig or
reward_shaper.RewardTable; nothing reads these at runtime once a config has
been built.

SN-11 CONFIGURATION:
- Thrust vector control with a single gimballed thruster (x/z gimbal)
- Unlimited propellant (no fuel model)
- Landing pad tagged "Landing Pad", every other surface tagged "Ground"
- World frame is Y-up, orientation reported as (pitch, yaw, roll) degrees
"""

import numpy as np

# ==============================================================================
# COLLISION TAGS
# ==============================================================================

LANDING_PAD_TAG = "Landing Pad"
GROUND_TAG = "Ground"

# ==============================================================================
# EPISODE
# ==============================================================================

EPISODE_TIMEOUT = 120.0  # seconds before forced timeout
FIXED_TIMESTEP = 0.02  # seconds, physics tick (50 Hz)

# Out-of-range bound per axis, symmetric, relative to the landing pad
OUT_OF_RANGE_DISTANCE = np.array([10000.0, 10000.0, 10000.0])

# ==============================================================================
# ACTUATION
# ==============================================================================

MAX_THRUST_FORCE = 12000.0  # N
# Maximum gimbal per axis (x, y, z) in degrees; y is unused by the thruster
MAX_THRUSTER_GIMBAL = np.array([30.0, 0.0, 30.0])

# ==============================================================================
# EPISODE INITIALISATION (relative to landing pad)
# ==============================================================================

MIN_INIT_POSITION = np.array([-100.0, 250.0, -100.0])
MAX_INIT_POSITION = np.array([100.0, 500.0, 100.0])
# Minimum horizontal spawn distance from the pad centre; 0 disables exclusion
MIN_PAD_CLEARANCE = 0.0

LANDING_PAD_POSITION = np.array([0.0, 0.0, 0.0])
LANDING_PAD_RADIUS = 15.0  # m

# ==============================================================================
# STATE CLASSIFICATION
# ==============================================================================

UPRIGHT_EPSILON = 0.01  # deg, hard "is upright" tolerance
UPRIGHT_ORIENTATION_RANGE = 5.0  # deg, wide tolerance for shaping eligibility
BELLY_FLOP_PITCH_RANGE = (85.0, 95.0)  # deg, closed band
BELLY_FLOP_ROLL_TOLERANCE = 5.0  # deg
STATIONARY_EPSILON = 1e-3  # m/s
MAX_APPROACH_SPEED = 5.0  # m/s
MIN_APPROACH_DISTANCE = 0.0  # m above ground
MAX_APPROACH_DISTANCE = 50.0  # m above ground
UPRIGHT_SWITCH_ALTITUDE = 1000.0  # m, belly-flop above / upright below
MAX_DISTANCE_FROM_PAD = 50.0  # m, normaliser of the pad-distance reward

# ==============================================================================
# REWARD MAGNITUDES
# ==============================================================================

LANDED_UPRIGHT_REWARD = 1.0
LANDED_ON_PAD_REWARD = 1.0
CRASHED_ON_PAD_REWARD = 0.2
PAD_DISTANCE_REWARD_SCALE = 1.0
UPRIGHT_POSITION_REWARD = 0.0001
BELLY_FLOP_POSITION_REWARD = 0.0001
APPROACHING_VELOCITY_REWARD = 0.01
OFF_PAD_CONTACT_PENALTY = -0.25

# Shaping magnitudes must stay this many times below the terminal magnitudes
MIN_TERMINAL_TO_SHAPING_RATIO = 10.0

# ==============================================================================
# SYNTHETIC RIGID BODY (rocket_physics.RocketPhysics)
# ==============================================================================

GRAVITY = 9.81  # m/s², along -Y
VEHICLE_MASS = 1000.0  # kg
VEHICLE_HEIGHT = 10.0  # m
VEHICLE_RADIUS = 1.0  # m
GROUND_HALF_EXTENT = 5000.0  # m, ray casts miss beyond this square
CONTACT_FRICTION = 0.6  # fraction of horizontal velocity removed per tick
CONTACT_ANGULAR_DAMPING = 0.5  # fraction of angular velocity removed per tick
REST_SPEED_THRESHOLD = 0.05  # m/s (and rad/s) below which a grounded body is at rest
CONTACT_EXIT_MARGIN = 0.05  # m the base must clear the surface to end contact

# ==============================================================================
# OBSERVATION
# ==============================================================================

# orientation(3) + velocity(3) + ground distance(1) + pad offset(3) +
# angular velocity(3) + thrust vector orientation(2) + thrust(1)
OBSERVATION_SIZE = 16
ACTION_SIZE = 3


def print_configuration_summary():
    """Print a summary of the SN-11 agent configuration."""
    print("="*70)
    print("SN-11 LANDING AGENT CONFIGURATION SUMMARY")
    print("="*70)
    print(f"\nEPISODE:")
    print(f"  Timeout:               {EPISODE_TIMEOUT:.0f} s")
    print(f"  Fixed timestep:        {FIXED_TIMESTEP:.3f} s")
    print(f"  Out-of-range bound:    {OUT_OF_RANGE_DISTANCE.tolist()} m")

    print(f"\nACTUATION:")
    print(f"  Max thrust force:      {MAX_THRUST_FORCE:,.0f} N")
    print(f"  Max thruster gimbal:   {MAX_THRUSTER_GIMBAL.tolist()} deg")

    print(f"\nINITIALISATION:")
    print(f"  Min init position:     {MIN_INIT_POSITION.tolist()} m")
    print(f"  Max init position:     {MAX_INIT_POSITION.tolist()} m")
    print(f"  Min pad clearance:     {MIN_PAD_CLEARANCE:.1f} m")

    print(f"\nCLASSIFICATION:")
    print(f"  Upright epsilon:       {UPRIGHT_EPSILON} deg")
    print(f"  Upright range:         {UPRIGHT_ORIENTATION_RANGE} deg")
    print(f"  Belly-flop pitch band: {BELLY_FLOP_PITCH_RANGE} deg")
    print(f"  Stationary epsilon:    {STATIONARY_EPSILON} m/s")
    print(f"  Max approach speed:    {MAX_APPROACH_SPEED} m/s")
    print(f"  Approach window:       ({MIN_APPROACH_DISTANCE}, {MAX_APPROACH_DISTANCE}) m")
    print(f"  Upright switch alt.:   {UPRIGHT_SWITCH_ALTITUDE:.0f} m")

    print(f"\nREWARDS:")
    print(f"  Landed upright:        {LANDED_UPRIGHT_REWARD}")
    print(f"  Landed on pad:         {LANDED_ON_PAD_REWARD}")
    print(f"  Crashed on pad:        {CRASHED_ON_PAD_REWARD}")
    print(f"  Pad distance (max):    {PAD_DISTANCE_REWARD_SCALE} over {MAX_DISTANCE_FROM_PAD} m")
    print(f"  Upright shaping:       {UPRIGHT_POSITION_REWARD}")
    print(f"  Belly-flop shaping:    {BELLY_FLOP_POSITION_REWARD}")
    print(f"  Approach shaping:      {APPROACHING_VELOCITY_REWARD}")
    print(f"  Off-pad contact:       {OFF_PAD_CONTACT_PENALTY}")
    print("="*70)


if __name__ == "__main__":
    print_configuration_summary()
