"""
Basic Power Analysis Example
============================

This example checks whether a planned pre/post trial has enough power to
detect a treatment-specific change on a 1-100 rating scale.
"""

from rmpower import RMPower

# Example: wellbeing rated 1-100, measured before and after an intervention
# Research question: does the treatment group change differently from control?

print("=" * 60)
print("BASIC POWER ANALYSIS EXAMPLE")
print("=" * 60)

# 1. Define the design: two groups, two time points
model = RMPower(groups=["control", "treatment"], times=2)

# 2. Expected cell means (group-major: control pre, control post,
#    treatment pre, treatment post) and a shared standard deviation.
#    Only the treatment group drops by 5 points after the intervention.
model.set_design(means=[50, 50, 50, 45], sds=10)

# 3. Reproducible run with fewer replications for a quick look
model.set_seed(2024)
model.set_replications(200)

# 4. Power at 60 participants per group
model.find_power(sample_size=60)

# 5. The same design, scores skewed toward the top of the scale
print("\nWith left-skewed ratings:")
model.set_distribution("left_skewed")
model.find_power(sample_size=60)
