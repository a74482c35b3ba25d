"""Energy converter plugin."""

manifest = {
    "title": "Energy Converter",
    "summary": "Hartree, eV, kcal/mol, kJ/mol, cm⁻¹, K, MHz and nm kept in sync, with significant-digit precision and a difference mode.",
    "blueprint": "energy_converter",
    "category": "General Utilities",
}


__all__ = ["manifest"]
