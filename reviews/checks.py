from django.conf import settings
from django.core.checks import Error, register

SLOW_POLICIES = ('warn', 'fail')


@register()
def check_deactivation_policy(app_configs, **kwargs):
    policy = settings.TEAM_DEACTIVATION_SLOW_POLICY
    if str(policy).lower() in SLOW_POLICIES:
        return []
    return [
        Error(
            f'TEAM_DEACTIVATION_SLOW_POLICY must be one of {", ".join(SLOW_POLICIES)}, got {policy!r}',
            id='reviews.E001',
        )
    ]
