def first_name(profile):
    """Greeting name: first_name, else the first word of full_name, else 'there'."""
    if profile is None:
        return 'there'
    if profile.first_name:
        return profile.first_name
    if profile.full_name:
        return profile.full_name.split(' ')[0]
    return 'there'


def full_name(profile):
    if profile is None:
        return ''
    if profile.first_name and profile.last_name:
        return f"{profile.first_name} {profile.last_name}"
    if profile.first_name:
        return profile.first_name
    return profile.full_name or ''
