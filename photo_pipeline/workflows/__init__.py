"""CI workflows that run inside GitHub Actions."""
