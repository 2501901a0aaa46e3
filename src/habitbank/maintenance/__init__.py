"""Store maintenance: duplicate cleanup, pointer repair, legacy key migration."""
