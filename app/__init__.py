"""HomeKrypto booking, pricing and eligibility service package."""
