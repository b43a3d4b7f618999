"""Reference lists shared by the workflow catalogue and the heuristic scorer."""

NIGERIAN_BANKS = (
    "Access Bank", "Citibank", "Ecobank Nigeria", "Fidelity Bank Nigeria", "First Bank of Nigeria",
    "First City Monument Bank", "Guaranty Trust Bank", "Jaiz Bank", "Keystone Bank Limited",
    "Polaris Bank", "Stanbic IBTC Bank Nigeria", "Standard Chartered Bank", "Sterling Bank",
    "SunTrust Bank Nigeria", "TAJBank", "Union Bank of Nigeria", "United Bank for Africa",
    "Unity Bank Plc", "Wema Bank", "Zenith Bank",
)

STATES_AND_LGAS = {
    "Abuja (FCT)": ("Abuja Municipal", "Bwari", "Gwagwalada", "Kuje", "Kwali"),
    "Lagos": ("Agege", "Ikeja", "Kosofe", "Mushin", "Oshodi-Isolo"),
    "Rivers": ("Port Harcourt", "Obio-Akpor", "Eleme", "Ikwerre", "Oyigbo"),
    "Kano": ("Kano Municipal", "Fagge", "Dala", "Gwale", "Tarauni"),
    "Oyo": ("Ibadan North", "Ibadan South-West", "Ibadan North-West", "Ibadan North-East", "Ibadan South-East"),
}

POLITICAL_PARTIES = ("ACN", "PDP", "APC", "LP", "NNPP", "APGA")

TITLES = ("Hon.", "Chief", "Dr.", "Mr.", "Mrs.", "Ms.")

# Card face values in naira
DENOMINATIONS = (1000, 2000, 5000, 10000)

# Nigerian mobile numbers: 070x/080x/081x/090x/091x + 8 digits
NG_PHONE_PATTERN = r"0[789][01]\d{8}"
