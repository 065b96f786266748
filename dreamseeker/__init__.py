"""
DreamSeeker reminder and countdown scheduling package.

Client-side countdown/notification scheduling lives in ``dreamseeker.scheduling``;
the server-side reminder sweep and push dispatch live in ``dreamseeker.reminders``.
"""
