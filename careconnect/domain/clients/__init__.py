"""Client domain - profile, saved locations, family members and favorites"""
