from file_cloud.cli import main

if __name__ == "__main__":
    main()
