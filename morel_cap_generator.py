"""
morel_cap_generator.py
Generate the cap surface of a morel mushroom and report on the mesh.

Adjust the parameters at the top of the file, then run:
    python morel_cap_generator.py
"""

from capGenerators.cap_generator import generate, to_trimesh
from capGenerators.shape import DeformationMode, ShapeParameters, WideningProfile
from capGenerators.stem import BezierStem

# ── Shape ───────────────────────────────────────────────────────────────────
HEIGHT               = 10.0   # total height, stem + cap
STEM_HEIGHT_PART     =  0.3   # fraction of HEIGHT taken by the stem
JUNCTION_RADIUS      =  1.0   # cap radius where it meets the stem
CAP_MAX_RADIUS       =  3.0   # widest radius of the base ellipsoid
VERTICAL_DIVISIONS   =  64    # vertices per ring
HORIZONTAL_DIVISIONS =  64    # number of rings

# ── Widening ────────────────────────────────────────────────────────────────
MAX_RADIUS_FACTOR      = 1.2    # plateau radius grows by 1 + this
WIDENING_POWER         = 3      # must be odd
BASE_MAX_HEIGHT_FACTOR = 0.20   # bulge reaches its plateau at this fraction of the cap
TIP_MAX_HEIGHT_FACTOR  = 0.99   # and leaves it here

# ── Surface ─────────────────────────────────────────────────────────────────
# NOISE gives the wrinkled look, FACADE the honeycomb of pits. One per run.
DEFORMATION    = DeformationMode.NOISE
NOISE_OCTAVES  = 18
NOISE_STRENGTH = 1.0        # "Perlin power"
NOISE_SEED     = 19894264   # None = new pattern every run
FACADE_DENSITY = 1.0        # "holes density", scales the cell count

# ── Stem ────────────────────────────────────────────────────────────────────
CURVATURE_VARIANCE = 0.05   # sideways lean of the stem top, in units of HEIGHT
# ────────────────────────────────────────────────────────────────────────────


if __name__ == "__main__":
    params = ShapeParameters(
        height=HEIGHT,
        stem_height_part=STEM_HEIGHT_PART,
        junction_radius=JUNCTION_RADIUS,
        cap_max_radius=CAP_MAX_RADIUS,
        vertical_divisions=VERTICAL_DIVISIONS,
        horizontal_divisions=HORIZONTAL_DIVISIONS,
        deformation=DEFORMATION,
        noise_octaves=NOISE_OCTAVES,
        noise_strength=NOISE_STRENGTH,
        noise_seed=NOISE_SEED,
        facade_density=FACADE_DENSITY,
        widening=WideningProfile(
            max_radius_factor=MAX_RADIUS_FACTOR,
            power=WIDENING_POWER,
            base_max_height_factor=BASE_MAX_HEIGHT_FACTOR,
            tip_max_height_factor=TIP_MAX_HEIGHT_FACTOR,
        ),
    )

    cap = generate(params, BezierStem.leaning(CURVATURE_VARIANCE))
    mesh = to_trimesh(cap)

    lo, hi = mesh.bounds
    print(f"Vertices    : {len(cap)}")
    print(f"Faces       : {len(mesh.faces)}")
    print(f"Surface     : {mesh.area:.2f}")
    print(f"Bounds      : ({lo[0]:.2f}, {lo[1]:.2f}, {lo[2]:.2f}) .. "
          f"({hi[0]:.2f}, {hi[1]:.2f}, {hi[2]:.2f})")
    print(f"Deformation : {params.deformation.value}")
