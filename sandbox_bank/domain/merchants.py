"""Merchant and description catalogs for synthetic transactions"""

GROCERY_STORES = [
    "Walmart Supercenter",
    "Target",
    "Kroger",
    "Safeway",
    "Whole Foods Market",
    "Trader Joe's",
    "Publix",
    "Albertsons",
    "Food Lion",
    "Giant Eagle",
]

GAS_STATIONS = [
    "Shell",
    "ExxonMobil",
    "BP",
    "Chevron",
    "Texaco",
    "Marathon",
    "Sunoco",
    "Valero",
    "Phillips 66",
    "Circle K",
]

RESTAURANTS = [
    "McDonald's",
    "Subway",
    "Pizza Hut",
    "Domino's",
    "KFC",
    "Burger King",
    "Taco Bell",
    "Wendy's",
    "Chick-fil-A",
    "Chipotle",
]

ONLINE_STORES = [
    "Amazon.com",
    "eBay",
    "Etsy",
    "Walmart.com",
    "Target.com",
    "Best Buy",
    "Newegg",
    "B&H Photo",
    "Overstock",
    "Wayfair",
]

CREDIT_CARD_PURCHASES = [
    "Online Purchase - Amazon",
    "Gas Station - Shell",
    "Restaurant - Downtown Cafe",
    "Grocery Store - Walmart",
    "Department Store - Target",
    "Coffee Shop - Starbucks",
    "Fast Food - McDonald's",
    "Pharmacy - CVS",
    "Hardware Store - Home Depot",
    "Electronics - Best Buy",
    "Clothing Store - H&M",
    "Bookstore - Barnes & Noble",
    "Movie Theater - AMC",
    "Gym Membership - Planet Fitness",
    "Subscription - Netflix",
]

CHECKING_PURCHASES = [
    "Coffee Shop - Local Brew",
    "Fast Food - Burger Joint",
    "Pharmacy - Local Drugstore",
    "Hardware Store - Local Hardware",
    "Electronics - Local Tech Shop",
    "Clothing Store - Local Boutique",
    "Bookstore - Local Books",
    "Movie Theater - Local Cinema",
    "Gym Membership - Local Gym",
    "Subscription - Local Service",
    "Pet Store - Local Pet Shop",
    "Barber Shop - Local Barber",
    "Dry Cleaner - Local Cleaners",
    "Car Wash - Local Car Wash",
    "Hair Salon - Local Salon",
    "Nail Salon - Local Nails",
]

DONATIONS = [
    "Donation - American Red Cross",
    "Donation - United Way",
    "Donation - Salvation Army",
    "Donation - St. Jude Children's Hospital",
    "Donation - World Wildlife Fund",
    "Donation - Doctors Without Borders",
    "Donation - Habitat for Humanity",
    "Donation - Feeding America",
    "Donation - Make-A-Wish Foundation",
    "Donation - Local Food Bank",
    "Donation - Animal Shelter",
    "Donation - Local Church",
    "Donation - Community Center",
    "Donation - School Fundraiser",
    "Donation - Disaster Relief Fund",
]

SPENDING_CATEGORIES = [
    "Food & Dining",
    "Shopping",
    "Transportation",
    "Entertainment",
    "Health & Fitness",
    "Personal Care",
    "Home & Garden",
    "Education",
    "Travel",
    "Utilities",
]

CREDIT_SOURCES = [
    "Direct Deposit - Payroll",
    "Incoming Wire Transfer",
    "Mobile Check Deposit",
    "Zelle Payment Received",
    "ACH Credit",
]
