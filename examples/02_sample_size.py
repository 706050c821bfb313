"""
Sample Size Search Example
==========================

Finds the smallest number of participants per group that reaches 80% power
for the group x time interaction, and exports the power curve.
"""

from rmpower import RMPower, TqdmReporter

model = RMPower(groups=["waitlist", "app", "coaching"], times=3)

# Both active arms improve by 6 points at each follow-up
model.set_interaction_effect(baseline=40, effect=6, sd=12)
model.set_support(1, 100)
model.set_seed(7)
model.set_power(80)

# Use half of the available cores
model.set_parallel(True)

results = model.find_sample_size(
    from_size=20,
    to_size=120,
    by=20,
    summary="long",
    return_results=True,
    progress_callback=TqdmReporter(),
    timeout=600,
)

curve = results["results"]["power_curve"]
curve.to_csv("power_curve.csv")

# Re-evaluate the same simulations at a stricter alpha without rerunning
strict = model.power_curve(alpha=0.01)
print(f"\nRequired sample size at alpha = 0.01: {strict.first_achieved(model.power)}")
