# Investments module
