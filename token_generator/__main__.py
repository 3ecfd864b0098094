from token_generator.main import main

main()
