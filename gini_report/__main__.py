from .cli import main

if __name__ == "__main__":
    main()

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
